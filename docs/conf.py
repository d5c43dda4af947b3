# Sphinx configuration file

import os
import sys
from importlib import metadata

sys.path.insert(0, os.path.abspath('../src'))

project = 'Client Workflow Automation'
author = 'Client Workflow Automation contributors'
copyright = f'2024, {author}'

try:
    release = metadata.version('client-workflow-automation')
except metadata.PackageNotFoundError:
    release = '0.1.0'
version = '.'.join(release.split('.')[:2])

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx.ext.intersphinx',
    'sphinx_autodoc_typehints',
]

templates_path = ['_templates']
exclude_patterns = ['_build']

html_theme = 'sphinx_rtd_theme'
html_title = f'{project} {release}'

# The engine is the documented surface; the HTTP adapter is described by its
# OpenAPI schema at /api/docs.
autodoc_mock_imports = ['fastapi']
autodoc_default_options = {
    'members': True,
    'member-order': 'bysource',
    'show-inheritance': True,
}
autodoc_class_signature = 'separated'
always_document_param_types = False
typehints_defaults = 'comma'

napoleon_google_docstring = True
napoleon_numpy_docstring = False
napoleon_use_rtype = False

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'pydantic': ('https://docs.pydantic.dev/latest', None),
    'requests': ('https://requests.readthedocs.io/en/latest', None),
}

# Environment variables read by EngineSettings, for use as |state_path_env| etc.
rst_epilog = """
.. |state_path_env| replace:: ``WORKFLOW_STATE_PATH``
.. |catalog_path_env| replace:: ``WORKFLOW_CATALOG_PATH``
.. |strict_triggers_env| replace:: ``WORKFLOW_STRICT_TRIGGERS``
"""
