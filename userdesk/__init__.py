"""userdesk: a small CRUD service for user records over HTTP."""
