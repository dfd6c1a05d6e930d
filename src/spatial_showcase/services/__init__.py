"""Authorization, share-link and analytics services."""
