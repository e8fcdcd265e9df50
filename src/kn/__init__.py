"""A command-line client for Knative Serving and Eventing."""

__version__ = "0.1.0"
