# issue_area/__init__.py
"""
Train and serve a classifier that predicts the area label of a GitHub issue.

Modules:
- schema: Issue records, prediction results and the persisted input schema.
- load_data: Reads tab-separated (or parquet) issue datasets.
- features: Builds the text featurization pipeline.
- train: Fits the maximum-entropy classifier on top of the features.
- evaluate: Multiclass metrics against a held-out test set.
- model_store: Saves and reloads the trained model with its schema.
- predict: Single-issue inference.
- cli: End-to-end train / evaluate / save / reload / predict run.
"""

__version__ = "0.1.0"
