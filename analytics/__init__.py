"""BrandLens Analytics - aggregation core for brand intelligence reports."""
