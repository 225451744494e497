"""Cross-cutting pieces: tokens, permissions, ownership, audit trail, middleware."""
