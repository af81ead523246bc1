"""Task Management API.

A REST backend for task management: users authenticate with a JWT,
admins manage every task, regular users manage the tasks assigned to
them and comment on tasks.
"""

__version__ = "0.1.0"
