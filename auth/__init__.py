"""
auth — User authentication module.

Provides:
  • ``TokenService`` — signed, 24h identity tokens
  • Password hashing (bcrypt)
  • Signup / Login API routes
  • ``get_current_identity`` FastAPI dependency
"""
