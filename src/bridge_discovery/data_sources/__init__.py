"""Chain data sources: JSON-RPC transport and the chain access port."""
