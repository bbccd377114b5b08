"""formforge command line interface."""
