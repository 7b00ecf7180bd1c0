"""Command-line tools for xlate.

- ``python -m xlate.cli translate`` -- translate texts through the cache
- ``python -m xlate.cli stats`` -- show cache statistics
- ``python -m xlate.cli purge`` -- remove expired entries
- ``python -m xlate.cli clear`` -- drop the whole cache
"""
