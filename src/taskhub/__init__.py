"""TaskHub: task management API with JWT auth and role-based access.

Users own tasks; admins can see and manage everything. Identity travels
in signed access/refresh tokens, durable state lives in the database.
"""

__version__ = "0.1.0"
