"""
API Routes - HTTP endpoint handlers

Routes receive HTTP requests, validate them, call services,
and return HTTP responses.
"""
