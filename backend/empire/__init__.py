"""Empire: on-demand studio imagery and viewport reveal coordination."""
