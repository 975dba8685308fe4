"""
------------------------------------------------------------------------------
Project:        DeweyFlux
File:           core/__init__.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Core logic package for DeweyFlux. Contains the taxonomy
                engine, classification client, serialization and export.
------------------------------------------------------------------------------
"""
