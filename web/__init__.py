# JSON API for the browser client
