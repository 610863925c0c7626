"""Identity federation service for the home-services marketplace."""
