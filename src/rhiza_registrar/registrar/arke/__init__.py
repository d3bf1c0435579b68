"""HTTP access to the Arke API."""
