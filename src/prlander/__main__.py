from prlander.cli import main

main()
