# Utils package for Commune bot
