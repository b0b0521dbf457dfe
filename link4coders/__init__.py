"""Rich link previews for Link4Coders profiles."""
