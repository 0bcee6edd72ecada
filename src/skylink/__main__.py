from skylink.cli.main import main

main()
