"""Protocol layer — frame codec, body codec, and packet model.

This layer depends only on stdlib, pydantic, and the domain layer.
It performs no I/O beyond reading from the stream it is handed.
"""
