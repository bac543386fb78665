"""editguard - structural edit guards for LLM-assisted copywriting.

Wraps every model edit of a draft post in a deterministic pipeline: the draft
is parsed into a Canon (hook, body blocks, CTA, tone), the instruction is
resolved to an edit scope, and the model completion is checked either as a
patch against that scope or as an anchored full rewrite.
"""

__version__ = "0.1.0"
