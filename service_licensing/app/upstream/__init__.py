from .client import EntitlementAuthorityClient, error_from_status, redirect_url_from

__all__ = ["EntitlementAuthorityClient", "error_from_status", "redirect_url_from"]
