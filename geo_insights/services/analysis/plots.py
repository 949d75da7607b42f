# geo_insights/services/analysis/plots.py
import logging
from typing import Optional

import geopandas as gpd
import matplotlib.pyplot as plt
import pandas as pd

from geo_insights.services.acs.errors import SchemaMismatchError

logger = logging.getLogger(__name__)

# Albers (CONUS): área preservada, padrão para coropléticos dos EUA
DEFAULT_PROJECTION = "EPSG:5070"


def _require(table: pd.DataFrame, *columns):
    missing = [c for c in columns if c and c not in table.columns]
    if missing:
        raise SchemaMismatchError(f"Colunas inexistentes: {missing}")


def plot_choropleth(table: gpd.GeoDataFrame, column: str, crs: str = DEFAULT_PROJECTION, ax=None, cmap: str = "viridis"):
    """Mapa coroplético de uma coluna numérica. Unidades sem geometria ficam de fora."""
    _require(table, column, "geometry")

    mapped = table[table.geometry.notna() & ~table.geometry.is_empty]
    skipped = len(table) - len(mapped)
    if skipped:
        logger.warning(f"{skipped} unidades sem geometria fora do mapa.")

    if ax is None:
        _, ax = plt.subplots(figsize=(10, 6))

    if mapped.empty:
        ax.set_axis_off()
        return ax

    mapped.to_crs(crs).plot(
        column=column,
        ax=ax,
        cmap=cmap,
        legend=True,
        missing_kwds={"color": "lightgrey", "label": "Sem dado"},
    )
    ax.set_title(column)
    ax.set_axis_off()
    return ax


def plot_scatter(table: pd.DataFrame, x: str, y: str, size: Optional[str] = None, ax=None, max_marker: float = 300.0):
    """
    Dispersão x/y. Se `size` for dado (ex: housing_units_total, usado como proxy
    de população), a área do marcador é proporcional ao peso.
    """
    _require(table, x, y, size)

    cols = [x, y] + ([size] if size else [])
    data = table[cols].apply(pd.to_numeric, errors="coerce").dropna()

    if ax is None:
        _, ax = plt.subplots(figsize=(8, 6))

    sizes = None
    if size and not data.empty and data[size].max() > 0:
        sizes = data[size] / data[size].max() * max_marker

    ax.scatter(data[x], data[y], s=sizes, alpha=0.5, edgecolors="none")
    ax.set_xlabel(x)
    ax.set_ylabel(y)
    return ax
