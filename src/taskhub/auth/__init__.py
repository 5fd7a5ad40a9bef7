"""Authentication and authorization.

Three layers, each usable on its own:
1. password / jwt → credentials and signed tokens
2. dependencies → bearer header → Principal (the authentication gate)
3. policy → pure allow/deny decisions over a Principal and a resource
"""
