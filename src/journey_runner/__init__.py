"""Config-driven multi-page browser journey runner.

Drives a browser through a multi-step web flow (application forms, checkout
flows), filling fields from a declarative field map, collecting values along
the way, running accessibility audits and producing a JSON run report.
"""

__version__ = "0.1.0"
