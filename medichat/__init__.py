"""MediChat hospital chat backend."""
