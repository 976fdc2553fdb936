"""JOEL QR Gateway: follow-target QR codes and messenger landing pages."""
