"""Mesh and nodal analysis of linear resistive DC circuits.

Modules under ``app/`` import each other by bare name (``models``,
``simulation``, ``controllers``, ``scripting``), so ``app/`` itself must be
on ``sys.path`` rather than imported as a package.
"""
