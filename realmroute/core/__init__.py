"""Routing-data loading, hot reload, configuration, logging and errors."""
