from pubdist.cli.app import main

main()
