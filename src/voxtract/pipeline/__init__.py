"""Pipeline de extracao: download, normalizacao, filtros e entrega."""
