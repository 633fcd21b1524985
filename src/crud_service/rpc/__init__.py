"""
gRPC transport: runtime-built protobuf descriptors, per-kind services and the server builder.
"""
