# geo_insights/services/analysis/statistics.py
import logging
import math
from typing import Tuple

import numpy as np
import pandas as pd
from pydantic import BaseModel
from scipy import stats

from geo_insights.services.acs.errors import InsufficientDataError, SchemaMismatchError

logger = logging.getLogger(__name__)

MIN_PAIRS = 3


class CorrelationResult(BaseModel):
    x: str
    y: str
    coefficient: float
    ci_low: float
    ci_high: float
    t_statistic: float
    p_value: float
    n: int


class RegressionResult(BaseModel):
    dependent: str
    independent: str
    intercept: float
    slope: float
    r_squared: float
    p_value: float
    n: int


def _complete_pairs(table: pd.DataFrame, a: str, b: str) -> Tuple[np.ndarray, np.ndarray]:
    missing = [c for c in (a, b) if c not in table.columns]
    if missing:
        raise SchemaMismatchError(f"Colunas inexistentes: {missing}")

    pairs = table[[a, b]].apply(pd.to_numeric, errors="coerce").replace([np.inf, -np.inf], np.nan).dropna()
    dropped = len(table) - len(pairs)
    if dropped:
        logger.info(f"Ignorando {dropped} unidades sem {a}/{b}.")
    if len(pairs) < MIN_PAIRS:
        raise InsufficientDataError(f"Apenas {len(pairs)} pares completos para {a} x {b}.")
    return pairs[a].to_numpy(dtype=float), pairs[b].to_numpy(dtype=float)


def correlate(table: pd.DataFrame, x: str, y: str, confidence_level: float = 0.95) -> CorrelationResult:
    """Correlação de Pearson com intervalo de confiança e estatística t."""
    xs, ys = _complete_pairs(table, x, y)
    if np.ptp(xs) == 0 or np.ptp(ys) == 0:
        raise InsufficientDataError(f"{x} ou {y} é constante; correlação indefinida.")

    result = stats.pearsonr(xs, ys)
    ci = result.confidence_interval(confidence_level=confidence_level)
    r = float(result.statistic)
    n = len(xs)
    t = math.inf if abs(r) >= 1 else r * math.sqrt((n - 2) / (1 - r ** 2))

    logger.info(f"📈 Pearson {x} x {y}: r={r:.3f} (n={n})")
    return CorrelationResult(
        x=x, y=y,
        coefficient=r,
        ci_low=float(ci.low), ci_high=float(ci.high),
        t_statistic=t,
        p_value=float(result.pvalue),
        n=n,
    )


def fit_linear(table: pd.DataFrame, dependent: str, independent: str) -> RegressionResult:
    """Regressão linear simples (MQO): dependent = intercept + slope * independent."""
    xs, ys = _complete_pairs(table, independent, dependent)
    if np.ptp(xs) == 0:
        raise InsufficientDataError(f"{independent} é constante; inclinação indefinida.")

    fit = stats.linregress(xs, ys)
    logger.info(f"📉 Regressão {dependent} ~ {independent}: slope={fit.slope:.4f}")
    return RegressionResult(
        dependent=dependent,
        independent=independent,
        intercept=float(fit.intercept),
        slope=float(fit.slope),
        r_squared=float(fit.rvalue ** 2),
        p_value=float(fit.pvalue),
        n=len(xs),
    )
