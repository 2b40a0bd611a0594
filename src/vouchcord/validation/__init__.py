"""
Message validation pipeline.

- **vouch_validator.py**: keyword, mention and value checks deciding whether a
  message is a vouch; emoji cleanup and value extraction for storage.
- **image_extractor.py**: gathers image URLs from attachments, embeds,
  stickers and text, then collapses them to one canonical URL per image.
- **image_verifier.py**: optional HTTP reachability check for image URLs.

Everything except the HTTP verifier is pure and safe to call from any task.
"""
