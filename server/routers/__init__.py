"""HTTP routers for the UNO server."""
