# CLI command implementations - one module per group of server endpoints
