"""
Sure Chat Bot - Source Package

A chat front end for the Sure personal finance app. Users add
transactions by answering a short series of prompts instead of
opening the web UI.

DESIGN PRINCIPLES:
1. One message in, one reply out
2. Fail visibly, keep the user's progress
3. Only known numbers may talk to the bot
4. Every step is logged
5. The finance backend is swappable
"""

__version__ = "1.0.0"
__author__ = "Sure Chat Bot Team"
