"""
Classificação de texto: dicionários de categorias, nome e intenção de produto
"""
