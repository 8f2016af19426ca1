"""Keeps short notes in a single plain-text file.

If you installed via ``pip``, run ``note -h`` to get help.

To use the Python API, look at :class:`notefile.api.Notebook`
"""
