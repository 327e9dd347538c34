"""AI styling, SEO and category recommendations for a technical blog."""
