# ReelPress command-line client
