"""Command-line front end for tfvc-bridge."""
