"""Quire static site generator.

Quire reads content files with YAML front-matter, renders each one as a
Jinja2 template against the page and the whole site, optionally converts the
result from Markdown, wraps it in a layout and writes it to
``<permalink>/index.html`` in the output directory.

The main entry point is the CLI module, which provides the ``build`` command.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
