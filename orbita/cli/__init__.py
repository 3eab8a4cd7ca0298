"""
CLI (Typer + Rich). Solo compone comandos y formatea la salida.
"""
