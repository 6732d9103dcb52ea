"""Media generation cells, viewport reveal coordination, and the page
sessions that bind them together.
"""
