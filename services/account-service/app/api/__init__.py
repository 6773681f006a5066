"""HTTP routers and error translation."""
