"""Services operating on programs and cycles."""
