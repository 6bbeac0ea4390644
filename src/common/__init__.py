"""Wire protocol, connection and configuration shared by host and viewer."""
