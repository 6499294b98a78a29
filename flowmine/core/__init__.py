"""
Orchestration of the analyzers and persistence of their outputs
"""
from flowmine.core.runner import AnalysisResult, run_analysis, save_analysis
