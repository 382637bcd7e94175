"""REST surface of the agent: route table and embedded server."""
