# Cogs package for Commune bot
