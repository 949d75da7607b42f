# geo_insights/services/acs/errors.py


class GeoInsightsError(Exception):
    """Base de todos os erros do pipeline."""


class ScopeResolutionError(GeoInsightsError):
    """Geografia inválida ou não suportada (estado, condado, nível)."""


class UpstreamUnavailableError(GeoInsightsError):
    """Falha de rede ou da API do Census. Não é refeita automaticamente."""


class EmptyResultError(GeoInsightsError):
    """
    Escopo válido, mas sem nenhuma unidade retornada.
    Carrega a tabela vazia (com o schema correto) para quem quiser seguir adiante.
    """

    def __init__(self, scope, table):
        super().__init__(f"Nenhuma unidade retornada para {scope.label}.")
        self.scope = scope
        self.table = table


class FieldSpecError(GeoInsightsError):
    """O contrato dos seis campos foi violado (tamanho, nomes ou variáveis)."""


class SchemaMismatchError(GeoInsightsError):
    """Tabela sem as colunas esperadas."""


class InsufficientDataError(GeoInsightsError):
    """Poucos pares completos para rodar o teste estatístico."""
