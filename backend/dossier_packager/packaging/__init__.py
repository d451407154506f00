"""
Packaging — turns sent Toezicht dossiers into delivery bundles.

This package holds the packaging pipeline: descriptor rendering, archive
assembly, artifact naming, the run gate and the orchestrator that drives
each dossier through its status state machine.
"""
