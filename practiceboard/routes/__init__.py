"""HTTP routers: JSON API and HTML pages."""
