"""
BookBrief Backend — Middleware Package
========================================

Request → [Request ID] → [Logging] → [GZip] → [CORS] → route

RequestIDMiddleware is added last in create_app(), so it runs first and the
id is already set when RequestLoggingMiddleware writes its line.
"""
