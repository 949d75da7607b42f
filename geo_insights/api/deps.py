# geo_insights/api/deps.py
from typing import List, Optional

from fastapi import HTTPException, Query, status

from geo_insights.services.acs.assembler import DataAssembler
from geo_insights.services.acs.scope import Scope

def get_assembler() -> DataAssembler:
    """Um assembler por requisição (sobrescrito nos testes)."""
    return DataAssembler()

def get_scope(
    level: str = Query("county", pattern="^(county|tract)$"),
    state: Optional[str] = None,
    counties: List[str] = Query(default=[]),
) -> Scope:
    """Monta o escopo a partir da query string (?level=tract&state=CA&counties=Alameda)."""
    if level == "county":
        # Escopo nacional não tem recorte: filtro ignorado seria resultado enganoso
        if state or counties:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="state/counties só valem para level=tract.",
            )
        return Scope.nationwide()
    return Scope.tracts(state or "", counties)
