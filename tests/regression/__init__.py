#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Regression Tests

End-to-end decision cycles against the paper broker.
Uses pytest.approx / np.isclose for numerical comparisons.
"""
