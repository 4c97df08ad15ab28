"""
Serviços: persistência, clientes externos, métricas e fluxo do chat
"""
