"""Extension discovery, analysis pipeline and scan reporting."""
