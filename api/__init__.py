"""
Bookshelf API.

This package provides a small REST API for:
- Adding, listing, reading, updating and deleting books
- Filtering the book list by name, reading and finished status
- Keeping every record in process memory
"""
