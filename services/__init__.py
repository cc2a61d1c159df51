"""Client services: local cache, remote gateway, connectivity dispatch, speech and chat sessions."""
