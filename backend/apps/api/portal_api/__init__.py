"""
Portal API Application.

FastAPI application exposing the OAuth login flow.
"""
