"""ZST marketplace service: storefront orders, catalog and B2B offers."""
