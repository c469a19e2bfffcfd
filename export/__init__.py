"""Report renderers for computed loan results."""
