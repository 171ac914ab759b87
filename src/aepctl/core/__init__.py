"""
Request engine: authentication, request building, streaming JSON and paging.
"""
