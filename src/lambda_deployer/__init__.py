"""
Lambda Deployer.

Packages a Python project into a zip and deploys it to AWS Lambda in one or
more regions, reconciling event source mappings and scheduled events.
"""

__version__ = "0.1.0"
