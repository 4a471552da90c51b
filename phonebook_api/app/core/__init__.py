"""Configuration, logging, storage and error handling shared by the app."""
