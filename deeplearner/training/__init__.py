"""Costs, optimizers, the training loop and pipeline assembly."""
