"""Engines externos (download e transcodificacao) e execucao de subprocessos."""
