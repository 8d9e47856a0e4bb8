"""Provider-backed authentication mapped onto internal accounts."""
