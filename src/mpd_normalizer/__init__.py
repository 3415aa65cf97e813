"""Lambda that rewrites uploaded MPD manifests in canonical form."""
