"""Employee directory API.

GraphQL service over MongoDB for browsing and managing employee records,
with JWT authentication and role-based access control.
"""

__version__ = "1.0.0"
