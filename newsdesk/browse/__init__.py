"""Interactive browse/read session: state, reducer, key map and event loop."""
