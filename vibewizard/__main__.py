from vibewizard.cli import main

main()
